"""
Shelly - command line client for Shelly Cloud.

Creates, configures, deploys and manages clouds described in a project
Cloudfile, talking to the Shelly Cloud API and to git, ssh and rsync.
"""

__version__ = "0.4.0"
