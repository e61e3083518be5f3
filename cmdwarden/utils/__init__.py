"""
utils package for cmdwarden
"""
