"""
logdash — browse and search remotely stored application logs.

A session picks a bucket, environment, application and date, lists the
matching log files, pages through their content and runs full-text search
over the selected file set.
"""

__version__ = "0.1.0"
