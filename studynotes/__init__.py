"""
Study-notes engine.

Spaced-repetition scheduling, mastery tracking and knowledge-gap ranking
for a note-taking study app.
"""

__version__ = "1.0.0"
