"""Orchestrators: concurrent fan-out to verification sources and consensus."""
