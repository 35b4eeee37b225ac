"""Service layer — the deserialize, validate, sync and save pipeline.

Services may import from domain and infrastructure layers.
They must never import from twinform.form at runtime.
"""
