"""Parsers for the [[link]] and #tag notations embedded in note content."""
