"""
Weekly program service: cache lookup, generation, harmonization and
persistence wired together.
"""

import logging

from program_pipeline.cache_store import CacheStore, utc_now
from program_pipeline.config import cache_ttl_seconds
from program_pipeline.draft_validator import validate_draft
from program_pipeline.exercise_normalizer import ExerciseNormalizer
from program_pipeline.generation_gateway import GenerationGateway
from program_pipeline.muscle_map import ExerciseMuscleMap
from program_pipeline.persistence import PersistenceWriter
from program_pipeline.program_db import ProgramDB
from program_pipeline.program_types import (
    SOURCE_CACHE_HIT,
    SOURCE_FRESH,
    ProgramResult,
    WeeklyProgram,
)
from program_pipeline.signature import build_cache_key
from program_pipeline.split_enforcer import enforce_split
from program_pipeline.volume_harmonizer import (
    DEFAULT_MAX_SETS_PER_EXERCISE,
    DEFAULT_MINUTES_PER_SET,
    DEFAULT_SESSION_MINUTES,
    harmonize_volume,
)
from program_pipeline.weight_suggestions import merge_weight_suggestions


logger = logging.getLogger(__name__)


def cohort_constraints(cohort):
    constraints = {
        "training_focus": cohort.training_focus,
        "experience_level": cohort.experience_level,
    }
    if cohort.days_per_week:
        constraints["days_per_week"] = cohort.days_per_week
    if cohort.session_minutes:
        constraints["session_minutes"] = cohort.session_minutes
    return constraints


class ProgramService:
    """Serves one weekly program per request, from cache when possible."""

    def __init__(
        self,
        cache_store,
        gateway,
        persistence_writer,
        muscle_map,
        minutes_per_set=DEFAULT_MINUTES_PER_SET,
        max_sets_per_exercise=DEFAULT_MAX_SETS_PER_EXERCISE,
        default_session_minutes=DEFAULT_SESSION_MINUTES,
        clock=utc_now,
    ):
        self.cache_store = cache_store
        self.gateway = gateway
        self.persistence_writer = persistence_writer
        self.muscle_map = muscle_map
        self.normalizer = muscle_map.normalizer
        self.minutes_per_set = minutes_per_set
        self.max_sets_per_exercise = max_sets_per_exercise
        self.default_session_minutes = default_session_minutes
        self.clock = clock

    def get_weekly_program(self, request):
        """
        Return the user's weekly program.

        A live cache entry for the request signature is returned as-is and
        only a "cache-hit" history row is written. Otherwise the model is
        called once and the draft goes through validation, split enforcement,
        volume harmonization and weight suggestions before being recorded
        as "fresh" and cached.

        Raises:
            ConfigurationError, GatewayError, ValidationError, PersistenceError
        """
        cache_key = build_cache_key(request.user_id, request.tier_flag, request.onboarding_facts)

        cached = self.cache_store.get_program(cache_key)
        if cached is not None:
            record_id = self.persistence_writer.persist(
                cached, request.user_id, SOURCE_CACHE_HIT, cache_key=cache_key
            )
            return ProgramResult(
                program=cached,
                source=SOURCE_CACHE_HIT,
                cache_key=cache_key,
                record_id=record_id,
            )

        program, notes = self.build_program(request)
        record_id = self.persistence_writer.persist(
            program, request.user_id, SOURCE_FRESH, cache_key=cache_key
        )
        return ProgramResult(
            program=program,
            source=SOURCE_FRESH,
            cache_key=cache_key,
            record_id=record_id,
            notes=notes,
        )

    def build_program(self, request):
        """Generate and harmonize a fresh program. Returns (WeeklyProgram, notes)."""
        profile = dict(request.onboarding_facts or {})
        profile.update(request.profile or {})
        raw = self.gateway.generate(profile, cohort_constraints(request.cohort))

        draft = validate_draft(raw)
        draft, notes = enforce_split(draft, request.cohort, self.muscle_map)
        draft, advisories = harmonize_volume(
            draft,
            request.cohort,
            self.muscle_map,
            minutes_per_set=self.minutes_per_set,
            max_sets_per_exercise=self.max_sets_per_exercise,
            default_session_minutes=self.default_session_minutes,
        )
        draft, applied = merge_weight_suggestions(
            draft, request.personal_records, self.normalizer, unit=request.unit
        )

        notes = list(notes) + [f"{a.muscle_group}: {a.note}" for a in advisories]
        for note in notes:
            logger.info("Program correction for %s: %s", request.user_id, note)
        logger.info(
            "Built program for %s: %d day(s), %d advisory(ies), %d load suggestion(s)",
            request.user_id,
            len(draft.days),
            len(advisories),
            applied,
        )

        program = WeeklyProgram(
            draft=draft,
            advisories=advisories,
            generated_at=self.clock().isoformat(),
        )
        return program, notes


def build_service(config, api_key, db=None):
    """
    Wire a ProgramService from configuration.

    Returns:
        Tuple[ProgramService, ProgramDB]
    """
    if db is None:
        db = ProgramDB(config["database"]["path"])
        db.init_schema()

    normalizer = ExerciseNormalizer()
    harmonizer_config = config["harmonizer"]
    muscle_map = ExerciseMuscleMap.from_yaml(normalizer, harmonizer_config.get("muscle_map_file"))
    cache_store = CacheStore(db)
    writer = PersistenceWriter(db, cache_store, ttl_seconds=cache_ttl_seconds(config))
    gateway = GenerationGateway.from_config(config, api_key)

    service = ProgramService(
        cache_store,
        gateway,
        writer,
        muscle_map,
        minutes_per_set=harmonizer_config["minutes_per_set"],
        max_sets_per_exercise=harmonizer_config["max_sets_per_exercise"],
        default_session_minutes=harmonizer_config["default_session_minutes"],
    )
    return service, db
