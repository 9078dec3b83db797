"""
Help Feature
============

Command listing generated by the framework's built-in help formatter.
"""
