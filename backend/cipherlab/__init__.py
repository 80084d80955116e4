"""
CipherLab - cipher engine behind the interactive Caesar / AES-128 teaching tool.
"""

__version__ = '0.1.0'
