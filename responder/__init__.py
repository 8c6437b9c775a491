"""
Figma AI Responder

Watches Figma files for comments that mention a trigger phrase (default "@ai"),
rebuilds the surrounding comment thread, captures the commented frame, asks
Claude for design feedback and posts the answer back as a threaded reply.

Layout:
- common: config, credentials, processed-comment ledger, schemas, LLM client
- figma: REST client and screenshot (region) resolver
- sync: the polling engine (selection, threading, processing, scheduling)

Usage:
    from responder.common import load_config, CredentialStore, ProcessedLedger
    from responder.sync import Scheduler
"""

__version__ = "0.1.0"
