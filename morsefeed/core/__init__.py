"""Core text-processing modules.

WHY: The core package is everything that turns bytes into practice words
and remembers where reading stopped. It has no terminal or subprocess
code, so it can be tested in isolation and reused behind any sink.

HOW: ir.py defines the shared data structures, charmap.py the static
character tables, tokenizer.py the per-character automaton, source.py
the input buffers and span selection, links.py index-page link
extraction, writer.py row layout and the word budget, store.py the
persistent position and option records.

RULES:
- No module here talks to the terminal or spawns processes
- Errors are raised as morsefeed.errors types, never printed
"""
