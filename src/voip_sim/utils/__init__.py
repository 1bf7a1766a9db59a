"""
Utility Modules

Audio, configuration, logging and statistics helpers.
"""
