"""EchoListen: listening practice with segmented transcripts, synced playback and vocabulary review."""

__version__ = "0.1.0"
