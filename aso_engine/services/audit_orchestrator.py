"""Audit orchestration: one metadata audit from ruleset to classified combos."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Iterable

from aso_engine.config import settings
from aso_engine.core.exceptions import InvalidInputError
from aso_engine.schemas.audit import AuditDiagnostics, AuditResult
from aso_engine.schemas.combo import ComboGenerationResult
from aso_engine.schemas.ruleset import AppContext, AppMetadata, MergedRuleSet
from aso_engine.services.combos.classifier import ComboClassifier
from aso_engine.services.combos.generator import ComboGenerator
from aso_engine.services.patterns.cache import PatternCache, PatternSet, fallback_pattern_set
from aso_engine.services.relevance import TokenRelevanceScorer
from aso_engine.services.ruleset.leak_detection import summarize_leaks
from aso_engine.services.ruleset.profiles import detect_market, detect_vertical
from aso_engine.services.ruleset.resolver import RulesetResolver
from aso_engine.services.token_classifier import annotate_tokens, classify_tokens, combine_coverage
from aso_engine.services.tokenization import build_stopwords, tokenize

logger = logging.getLogger(__name__)

BrandLookup = Callable[[AppContext], Awaitable[Iterable[str]]]


class AuditOrchestrator:
    """Runs one audit and always returns a result.

    Sub-step failures degrade into smaller results flagged in the
    diagnostics block instead of raising.
    """

    def __init__(
        self,
        resolver: RulesetResolver | None = None,
        pattern_cache: PatternCache | None = None,
        *,
        brand_lookup: BrandLookup | None = None,
        generator: ComboGenerator | None = None,
        max_field_length: int | None = None,
    ) -> None:
        self.resolver = resolver or RulesetResolver()
        self.pattern_cache = pattern_cache or PatternCache()
        self.brand_lookup = brand_lookup
        self.generator = generator or ComboGenerator()
        self.max_field_length = max_field_length or settings.max_field_length

    async def evaluate_metadata(
        self,
        metadata: AppMetadata,
        *,
        noise_combos: Iterable[str] = (),
    ) -> AuditResult:
        """Detect vertical and market from listing metadata, then evaluate."""
        context = AppContext(
            vertical=detect_vertical(metadata.category, metadata.title, metadata.subtitle),
            market=detect_market(metadata.locale),
            client_id=metadata.tenant_id,
            app_id=metadata.app_id,
        )
        return await self.evaluate(
            metadata.title,
            metadata.subtitle,
            context,
            category=metadata.category,
            noise_combos=noise_combos,
        )

    async def evaluate(
        self,
        title: str | None,
        subtitle: str | None,
        context: AppContext,
        *,
        category: str | None = None,
        brand_tokens: Iterable[str] | None = None,
        noise_combos: Iterable[str] = (),
    ) -> AuditResult:
        diagnostics = AuditDiagnostics(vertical=context.vertical, market=context.market)
        title_text = self._checked_field("title", title, diagnostics)
        subtitle_text = self._checked_field("subtitle", subtitle, diagnostics)

        ruleset = await self._resolve_ruleset(context, category, diagnostics)
        pattern_set = await self._load_patterns(context, ruleset, diagnostics)

        stopwords = build_stopwords(ruleset.stopwords)
        scorer = TokenRelevanceScorer.from_ruleset(ruleset)
        title_tokens = tokenize(title_text, "title", scorer)
        subtitle_tokens = tokenize(subtitle_text, "subtitle", scorer)

        title_coverage = classify_tokens(title_tokens, pattern_set, stopwords)
        subtitle_coverage = classify_tokens(subtitle_tokens, pattern_set, stopwords)
        combined = combine_coverage(title_coverage, subtitle_coverage)

        try:
            generated = self.generator.generate(
                title_tokens,
                subtitle_tokens,
                scorer,
                stopwords,
                min_len=settings.combo_min_length,
                max_len=settings.combo_max_length,
            )
        except Exception as exc:
            logger.exception("Combo generation failed", extra={"vertical": context.vertical})
            diagnostics.step_errors.append(f"combo_generation: {exc}")
            generated = ComboGenerationResult()

        brands = await self._brand_tokens(context, brand_tokens, diagnostics)
        classifier = ComboClassifier(
            pattern_set,
            brand_tokens=brands,
            noise_combos=noise_combos,
            stopwords=stopwords,
        )
        combos = classifier.apply(generated)

        diagnostics.contributing_layers = list(ruleset.contributing_layers)
        diagnostics.unavailable_layers = list(ruleset.unavailable_layers)
        diagnostics.leak_warnings = list(ruleset.leak_warnings)
        diagnostics.leak_summary = summarize_leaks(ruleset.leak_warnings)

        logger.info(
            "Metadata audit evaluated",
            extra={
                "vertical": context.vertical,
                "market": context.market,
                "client_id": context.client_id,
                "app_id": context.app_id,
                "fallback_mode": diagnostics.fallback_mode,
                "combined_score": combined.score,
                "valuable_combos": len(combos.valuable),
            },
        )
        return AuditResult(
            title_tokens=annotate_tokens(title_tokens, pattern_set),
            subtitle_tokens=annotate_tokens(subtitle_tokens, pattern_set),
            title=title_coverage,
            subtitle=subtitle_coverage,
            combined=combined,
            combos=combos,
            diagnostics=diagnostics,
        )

    def invalidate(self, context: AppContext) -> None:
        """Evict cached ruleset and patterns for a context after an admin edit."""
        self.resolver.invalidate(context)
        self.pattern_cache.invalidate(*context.cache_key())

    def _checked_field(
        self,
        field: str,
        text: str | None,
        diagnostics: AuditDiagnostics,
    ) -> str:
        try:
            return self._validate_field(field, text)
        except InvalidInputError as exc:
            diagnostics.input_warnings.append(exc.message)
            return ""

    def _validate_field(self, field: str, text: str | None) -> str:
        stripped = (text or "").strip()
        if not stripped:
            raise InvalidInputError(field, "empty text")
        if len(stripped) > self.max_field_length:
            raise InvalidInputError(
                field,
                f"length {len(stripped)} exceeds {self.max_field_length} characters",
            )
        return stripped

    async def _resolve_ruleset(
        self,
        context: AppContext,
        category: str | None,
        diagnostics: AuditDiagnostics,
    ) -> MergedRuleSet:
        try:
            return await self.resolver.resolve(context, category)
        except Exception as exc:
            logger.exception("Ruleset resolution failed", extra={"vertical": context.vertical})
            diagnostics.step_errors.append(f"ruleset_resolution: {exc}")
            return MergedRuleSet(
                vertical=context.vertical,
                market=context.market,
                client_id=context.client_id,
                app_id=context.app_id,
            )

    async def _load_patterns(
        self,
        context: AppContext,
        ruleset: MergedRuleSet,
        diagnostics: AuditDiagnostics,
    ) -> PatternSet:
        try:
            pattern_set = await self.pattern_cache.get_patterns(*context.cache_key())
        except Exception as exc:
            logger.exception("Pattern lookup failed", extra={"vertical": context.vertical})
            diagnostics.step_errors.append(f"pattern_lookup: {exc}")
            pattern_set = fallback_pattern_set([f"Pattern lookup failed: {exc}"])

        pattern_set = pattern_set.extended(ruleset.active_intent_patterns)
        diagnostics.fallback_mode = pattern_set.fallback_mode
        diagnostics.pattern_diagnostics = list(pattern_set.diagnostics)
        diagnostics.patterns_used = len(pattern_set)
        return pattern_set

    async def _brand_tokens(
        self,
        context: AppContext,
        brand_tokens: Iterable[str] | None,
        diagnostics: AuditDiagnostics,
    ) -> list[str]:
        if brand_tokens is not None:
            return list(brand_tokens)
        if self.brand_lookup is None:
            return []
        try:
            return list(await self.brand_lookup(context))
        except Exception as exc:
            logger.warning(
                "Brand lookup failed, classifying without brand tokens",
                extra={"app_id": context.app_id, "error": str(exc)},
            )
            diagnostics.step_errors.append(f"brand_lookup: {exc}")
            return []
