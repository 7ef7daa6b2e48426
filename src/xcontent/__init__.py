"""Token streams over structured documents.

Clause parsers only ever see a `TokenCursor`; this package turns decoded JSON documents into the
pre-buffered token stream those parsers pull from.
"""
