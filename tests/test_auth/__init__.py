"""
Auth Module Tests
-----------------
Token codec, principal derivation, route authorization, the request pipeline
and end-to-end account flows.
"""
