"""morsefeed — turn prose into Morse-code practice text.

WHY: Morse practice is most useful with real text, but real text is full
of markup, typographic quotes, accented letters and punctuation that a
tone generator cannot key. This package normalizes any file or web page
into a stream of upper-cased words and, optionally, feeds them row by row
to an external tone generator with pause/skip/quit keys and a remembered
position.

HOW: Four-stage pipeline — source (file, stdin, or fetched page, with an
active byte span), tokenize (character-level state machine), write (rows
of words to a file or to the player), persist (resume position store).
Each stage is independently testable.

RULES:
- The tokenizer is the single place where characters become words
- Rows are the unit of synchronization with the player
- Quit/skip/word-limit are control flow, not errors
"""

__version__ = "0.5.1"
