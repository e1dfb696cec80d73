"""Custom exceptions for the gtk-doc synchroniser."""


class GtkdocSyncError(Exception):
    """Base exception for gtk-doc synchronisation."""


class DevhelpError(GtkdocSyncError):
    """The devhelp index could not be parsed."""


class GtkdocHtmlError(GtkdocSyncError):
    """A gtk-doc HTML page could not be parsed."""
