"""
Infrastructure layer.

WinRM remoting, CIM query scripts, name resolution, credential prompting,
configuration files and logging setup.
"""
