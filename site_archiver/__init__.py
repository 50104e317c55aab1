"""
Site Archiver - mirror a site's link hierarchy onto the filesystem.

Walks pages according to a declarative list of steps per destination and
downloads the resources found at the end of each branch.
"""

__version__ = "1.0.0"
__author__ = "Site Archiver Team"
