"""
`aido` turns a plain English question into a single shell command, lets you
refine it in a short conversation with the model and then runs it.
"""

__version__ = "0.3.0"
