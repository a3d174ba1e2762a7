"""Helps you jot notes, by gluing together your own finder, lister, editor and git.

If you installed via ``pip``, run ``jot -h`` to get help.

To use the Python API, look at :class:`jot.api.Jot`
"""
