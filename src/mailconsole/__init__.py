"""
mailconsole
===========

Minimal interactive console for sending mail over SMTP, listing the local
log of sent mail, and listing recent inbox messages over IMAP.
"""

__version__ = "0.1.0"
