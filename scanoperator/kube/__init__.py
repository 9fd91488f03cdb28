"""Kubernetes object helpers: references, hashing, an in-memory client, resolution, logs and secrets."""