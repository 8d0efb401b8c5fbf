"""Chat bridge: background assistant requests and reply directives."""
