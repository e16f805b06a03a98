"""Exceptions raised by entmoot."""


class MentionError(Exception):
    """Base class for mention-tracking errors."""


class ConfigurationError(MentionError):
    """An entity type is wired up incorrectly for mention tracking.

    Raised for integration mistakes: no adapter registered for the type, no
    mentionable fields declared, a field that is not declared, or an entity
    whose family scope or author cannot be resolved. These are programming
    errors and are never swallowed.
    """


class DuplicateMentionError(MentionError):
    """The store already holds a record for (owner, field, mentioned user)."""
