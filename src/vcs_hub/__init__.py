"""Repository remote-access layer: URIs, transports, commands and clone URIs."""
