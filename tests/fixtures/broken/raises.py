raise RuntimeError("schema module blew up on import")
