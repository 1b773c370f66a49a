"""Wire codecs for the remote-storage protocol."""
