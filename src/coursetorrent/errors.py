"""Exception hierarchy shared by the catalog, tracker engine and codec."""


class CourseTorrentError(Exception):
    """Base exception for all coursetorrent errors."""

    pass


class FormatError(CourseTorrentError):
    """Malformed bencode data or torrent metainfo."""

    pass


class ConflictError(CourseTorrentError):
    """A torrent with the same infohash is already loaded."""

    pass


class NotFoundError(CourseTorrentError):
    """The infohash is not loaded (never loaded, or unloaded)."""

    pass


class TrackerError(CourseTorrentError):
    """Every tracker in every tier failed for an announce."""

    pass
