"""
Stable cache keys derived from a user's training facts.
"""

import hashlib
import json

from program_pipeline.errors import ConfigurationError


KEY_PREFIX = "program:v1"
DIGEST_LENGTH = 16


def canonicalize_facts(onboarding_facts):
    """Serialize onboarding facts so key order never changes the output."""
    if onboarding_facts is None:
        onboarding_facts = {}
    if not isinstance(onboarding_facts, dict):
        raise ConfigurationError("Onboarding facts must be a mapping")

    return json.dumps(
        onboarding_facts,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        default=str,
    )


def facts_digest(onboarding_facts):
    canonical = canonicalize_facts(onboarding_facts)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()[:DIGEST_LENGTH]


def build_cache_key(user_id, tier_flag, onboarding_facts):
    """
    Build the cache key for one user's program request.

    The key embeds the user id and tier in clear text so cache rows can be
    traced back to a user without reversing the digest:
        program:v1:user=<user_id>:tier=<paid|free>:facts=<digest>
    """
    if user_id is None or not str(user_id).strip():
        raise ConfigurationError("A user id is required to build a cache key")

    tier = "paid" if tier_flag else "free"
    digest = facts_digest(onboarding_facts)
    return f"{KEY_PREFIX}:user={str(user_id).strip()}:tier={tier}:facts={digest}"
