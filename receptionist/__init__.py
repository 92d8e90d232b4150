"""AI Receptionist — customer-message processing with an offline fallback.

Architecture Overview
=====================

The system answers free-text (or transcribed) customer messages:

1. **Conversation engine** — a deterministic **LangGraph** pipeline
   (classify → extract → respond).  Intent classification is an ordered list
   of keyword rules; booking requests get a day/time pulled out with regexes
   (falling back to fixed defaults); the reply comes from fixed templates.

2. **Storage** — an append-only conversation log and a type-partitioned CRM
   record store, both built on a key-value substrate with prefix scans
   (in-memory, or a single SQLAlchemy table for durability).

3. **Resilience coordinator** — the client side.  It probes the remote
   service, routes each message to it while it is reachable, and falls back
   to the in-process engine (same templates, same output) on the first
   failure.  OFFLINE is sticky until a manual retry.

Key Design Decisions
--------------------
- **No learned NLU**: classification is keyword matching with a fixed rule
  precedence that is part of the behavioural contract.
- **Write-once keys**: every write is a fresh ``<namespace>:<partition>:<ms>``
  key, so no locking or transactions are needed.
- **No delivery**: notifications are generated and recorded, never sent.
- **Auth**: a single static bearer credential.

Package Structure
-----------------
- ``receptionist/engine.py`` — LangGraph pipeline definition
- ``receptionist/conversation/`` — intent rules, entity extraction, replies
- ``receptionist/prompts.py`` — reply, email and SMS templates
- ``receptionist/coordinator.py`` — client-side online/offline state machine
- ``receptionist/config.py`` — configuration from environment variables
- ``receptionist/server.py`` — FastAPI application
- ``receptionist/main.py`` — CLI chat interface (through the coordinator)
- ``receptionist/services/`` — KV stores, log, records, notifications,
  HTTP client, metrics
- ``receptionist/api/`` — FastAPI routes and Pydantic schemas
"""
