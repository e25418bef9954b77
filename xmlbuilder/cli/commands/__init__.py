"""
Command modules for the xmlbuilder CLI.

Each module registers its commands with the main app when imported.
"""
