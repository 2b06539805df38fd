"""playlistcard - search Spotify, pick 12 tracks, render them onto a playlist card PNG."""

__version__ = "0.1.0"
