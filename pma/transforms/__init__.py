"""
Transforms sub-package for pma.

Steps that run between reshaping and emission:

- scale.py: resolve configured scale factors onto devices and normalize
  raw values onto the common full-scale axis.
"""
