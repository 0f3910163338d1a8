"""
DualSync: keeps two remote VLC players (master and slave) in lockstep.

The control service (services/control.py) accepts one control intent per
request, reads each player's live status over its HTTP interface, and issues
the commands that bring both playback positions together.
"""

__version__ = "1.0.0"
