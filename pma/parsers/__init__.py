"""
Parsers sub-package for pma.

Everything that consumes input text lives here, leaf-first:

- tokens.py: the line tokenizer (quotes, ``#`` comments, token limit).
- stanza.py: ``StanzaReader``, the stanza locator and line counter.
- schema.py: the schema builder (``TIME_VALUES:``, ``METADATA:``, first
  ``DATE:``).
- devices.py: the device registry (first data set of the first file).
- base.py: the ``BaseStanzaParser`` ABC shared by the reshapers.
- vector.py / array.py: one reshaper per class layout.

Design: Strategy Pattern
- The reshaper for a class is chosen from its ``ClassKind`` by
  ``pma.reshape.get_stanza_parser()``.
"""
