"""Core announcement protocol: identity, codec, directory, scheduler, dispatcher."""
