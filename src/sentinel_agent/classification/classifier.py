"""
Process tier classification.

This module assigns a PHP process to the ``web`` tier (FPM/CGI workers that
serve requests) or the ``cli`` tier (artisan commands, queue workers, the
development server) by applying prioritized, configurable rules.
"""

import logging
import re
from typing import Dict, List, Optional, Sequence, Tuple

from ..models.config import TierRuleConfig

logger = logging.getLogger(__name__)


class TierClassifier:
    """Classify processes into tiers using prioritized rules.

    Rules are evaluated highest priority first; the first match wins. Results
    are cached per ``(name, cmdline)`` pair up to ``cache_size`` entries,
    since a PHP host runs many identical workers.
    """

    def __init__(self, rules: Sequence[TierRuleConfig], cache_size: int = 4096):
        self.rules: List[TierRuleConfig] = sorted(rules, key=lambda r: r.priority, reverse=True)
        self.cache_size = cache_size
        self._cache: Dict[Tuple[str, str], Optional[str]] = {}
        self._compiled: Dict[str, re.Pattern] = {}

    def classify(self, name: str, cmdline: str) -> Optional[str]:
        """Return the tier for a process, or None when no rule matches.

        Args:
            name: Process name (e.g. 'php-fpm8.3').
            cmdline: Space-joined command line.

        Examples:
            >>> TierClassifier(default_rules()).classify('php-fpm', 'php-fpm: pool www')
            'web'
            >>> TierClassifier(default_rules()).classify('php', 'php artisan queue:work')
            'cli'
        """
        cache_key = (name, cmdline)
        if cache_key in self._cache:
            return self._cache[cache_key]

        lowered_name = name.lower()
        lowered_cmdline = cmdline.lower()

        result = None
        for rule in self.rules:
            target = lowered_name if rule.match_field == "name" else lowered_cmdline
            if self._matches(rule, target):
                result = rule.tier
                break

        if len(self._cache) < self.cache_size:
            self._cache[cache_key] = result
        return result

    def _matches(self, rule: TierRuleConfig, target: str) -> bool:
        patterns = rule.patterns
        if rule.match_type == "in_list":
            candidates = patterns if isinstance(patterns, list) else [patterns]
            return target in [p.lower() for p in candidates]

        pattern = patterns if isinstance(patterns, str) else (patterns[0] if patterns else "")
        if not pattern:
            return False
        if rule.match_type == "exact":
            return target == pattern.lower()
        if rule.match_type == "contains":
            return pattern.lower() in target
        if rule.match_type == "regex":
            compiled = self._compiled.get(pattern)
            if compiled is None:
                compiled = re.compile(pattern, re.IGNORECASE)
                self._compiled[pattern] = compiled
            return bool(compiled.search(target))

        logger.warning(f"Unknown match type '{rule.match_type}' in tier rule")
        return False

    def clear_cache(self) -> None:
        """Drop cached classifications, e.g. after the rules changed."""
        self._cache.clear()
        logger.debug("Tier classification cache cleared")

    def get_cache_stats(self) -> Dict[str, int]:
        return {
            "cache_size": len(self._cache),
            "cache_limit": self.cache_size,
        }
