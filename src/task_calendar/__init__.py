"""
vault-tasks-calendar: checklist task lines and recurring series in a
markdown vault.
"""

__version__ = "0.1.0"
