"""
News Radio core package.

Modules
───────
models      — Pydantic data models (Article, UserSession, AIRequest, Analytics, …)
similarity  — letter-count topic embeddings and cosine similarity
store       — Redis-backed cache, sessions, similarity index and analytics
generator   — Claude article generation + the cached news pipeline
feeds       — RSS / NewsAPI ingestion with canned fallback
canned      — static topic-keyed articles
proxy       — allow-listed RSS proxy
speech      — single-channel read-aloud playback state
"""
