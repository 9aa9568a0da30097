"""Tool plugins built on the ctxedit core."""
