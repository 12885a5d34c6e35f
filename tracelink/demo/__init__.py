"""Client/server demo of cross-process trace correlation."""
