"""
Ping Feature
============

Health-check command proving the bot is connected and responding.
"""
