"""hookpost - webhook message composer with a synchronized local history"""
__version__ = "0.1.0"
