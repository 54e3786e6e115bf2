"""
Kokoro Infrastructure Layer

External integrations: generative providers, the memU memory service,
metrics, error tracking and detached background work.
"""
