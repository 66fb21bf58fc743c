"""
Domain layer for ccmstatus.

Pure data: status records, credentials, settings and the error taxonomy.
"""
