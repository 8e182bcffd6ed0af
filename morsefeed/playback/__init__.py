"""Interactive playback through an external tone generator.

WHY: Feeding rows to the player is the only part of the tool that owns
operating-system resources: a child process, two pipes, the controlling
terminal's mode and a set of signal handlers. Keeping them here keeps
the core free of side effects.

HOW: terminal.py puts the terminal into single-keystroke non-blocking
mode and guarantees it is restored, including from signal handlers.
controller.py spawns the player, sends rows and waits for each
acknowledgment, and polls the keyboard for pause, skip and quit.

RULES:
- The terminal is restored exactly once per session
- Key control is only active when stdin is a terminal and not the input
"""
