"""
CLI commands for ftpfetch.
"""
