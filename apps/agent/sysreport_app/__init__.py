"""SysReport agent command line."""
