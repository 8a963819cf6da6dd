"""
Transport adapters for the SEO service.

Both adapters decode requests, validate them with ``validation``, call the
controller and map its domain errors to their own status vocabulary. They
share no transport code, only the controller contract and the validators,
which is what keeps their decisions identical for equivalent inputs.
"""
