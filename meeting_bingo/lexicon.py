from __future__ import annotations
import json
import logging
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from pydantic import TypeAdapter

from .config import settings
from .errors import CategoryNotFound, InsufficientWordPool
from .schemas import CARD_WORD_COUNT, Category

logger = logging.getLogger(__name__)

# Built-in catalog. Word order is the display order of the pool, not card order.
DEFAULT_CATEGORIES: List[Category] = [
    Category(
        id='agile',
        name='Agile & Scrum',
        description='Sprint planning, standups, and retros',
        icon='🏃',
        words=[
            'Sprint', 'Standup', 'Retro', 'Backlog', 'Velocity', 'Story points',
            'Burndown', 'Scrum master', 'Product owner', 'Epic', 'User story', 'Kanban',
            'Blocker', 'Timeboxed', 'Self-organizing', 'Cross-functional', 'Swimlane', 'MVP',
            'Iteration', 'Refinement', 'Grooming', 'Acceptance criteria', 'Definition of done', 'Spike',
            'Pivot', 'Stakeholder', 'Deliverable', 'Capacity', 'Demo', 'Increment',
            'Ceremony', 'Impediment', 'Ticket', 'Jira', 'Scope creep', 'WIP limit',
            'Sprint goal', 'Planning poker', 'T-shirt sizing', 'Continuous improvement',
        ],
    ),
    Category(
        id='corporate',
        name='Corporate Speak',
        description='Synergy, leverage, and circling back',
        icon='💼',
        words=[
            'Synergy', 'Leverage', 'Circle back', 'Win-win', 'Net-net', 'Double-click',
            'Low-hanging fruit', 'Top of mind', 'Best practice', 'Game changer', 'Thought leader', 'Bleeding edge',
            'Move the needle', 'Deep dive', 'Bandwidth', 'Paradigm shift', 'Touch base', 'Take it offline',
            'ROI', 'Action item', 'Alignment', 'Value add', 'Boil the ocean', 'Core competency',
            'Going forward', 'Learnings', 'Reach out', 'Deliverables', 'KPI', 'Quick win',
            'Holistic', 'Empower', 'Disrupt', 'Streamline', 'Ping me', 'Parking lot',
            'North star', 'Run it up the flagpole', 'Ecosystem', 'Stakeholder buy-in',
        ],
    ),
    Category(
        id='tech',
        name='Tech Talk',
        description='APIs, deployments, and technical debt',
        icon='💻',
        words=[
            'API', 'CI/CD', 'DevOps', 'Microservices', 'Serverless', 'Postmortem',
            'Rollback', 'Codebase', 'Runtime', 'Uptime', 'Downtime', 'Load balancing',
            'Feature flag', 'Pull request', 'Code review', 'SLA', 'A/B test', 'Kubernetes',
            'Docker', 'Cloud native', 'Technical debt', 'Refactor', 'Latency', 'Scalability',
            'Edge case', 'Hotfix', 'Deploy', 'Legacy code', 'Monorepo', 'Pipeline',
            'Observability', 'Containerize', 'Machine learning', 'Data lake', 'Single source of truth', 'Dogfooding',
            'Shift left', 'Infrastructure as code', 'Zero downtime', 'Ship it',
        ],
    ),
]

# Canonical lowercase term -> spoken/transcribed variants
WORD_ALIASES: Dict[str, List[str]] = {
    # Acronyms and abbreviations
    'ci/cd': ['ci cd', 'cicd', 'continuous integration continuous delivery', 'ci-cd'],
    'mvp': ['minimum viable product', 'm.v.p.', 'm v p'],
    'roi': ['return on investment', 'r.o.i.', 'r o i'],
    'api': ['a.p.i.', 'a p i', 'application programming interface'],
    'devops': ['dev ops', 'dev-ops', 'development operations'],
    'sla': ['s.l.a.', 's l a', 'service level agreement'],
    'kpi': ['k.p.i.', 'k p i', 'key performance indicator'],
    'a/b test': ['a b test', 'ab test', 'split test', 'a-b test'],

    # Agile compound words
    'standup': ['stand up', 'stand-up'],
    'burndown': ['burn down', 'burn-down'],
    'timeboxed': ['time boxed', 'time-boxed'],
    'self-organizing': ['self organizing', 'selforganizing'],
    'cross-functional': ['cross functional', 'crossfunctional'],
    'swimlane': ['swim lane', 'swim-lane'],
    'retro': ['retrospective'],

    # Corporate compound words
    'win-win': ['win win', 'winwin'],
    'net-net': ['net net', 'netnet'],
    'double-click': ['double click', 'doubleclick'],
    'low-hanging fruit': ['low hanging fruit'],
    'top of mind': ['top-of-mind'],
    'best practice': ['best practices'],
    'game changer': ['game-changer', 'gamechanger'],
    'thought leader': ['thought-leader', 'thoughtleader'],
    'bleeding edge': ['bleeding-edge', 'bleedingedge'],

    # Tech compound words
    'microservices': ['micro services', 'micro-services'],
    'serverless': ['server less', 'server-less'],
    'postmortem': ['post mortem', 'post-mortem'],
    'rollback': ['roll back', 'roll-back'],
    'codebase': ['code base', 'code-base'],
    'runtime': ['run time', 'run-time'],
    'uptime': ['up time', 'up-time'],
    'downtime': ['down time', 'down-time'],
    'load balancing': ['load-balancing', 'loadbalancing'],
    'feature flag': ['feature-flag', 'featureflag'],
    'pull request': ['pull-request', 'pullrequest', 'pr'],
    'code review': ['code-review', 'codereview'],
}

_catalog_adapter = TypeAdapter(List[Category])


def distinct_words(words: Iterable[str]) -> List[str]:
    """Drop case-insensitive duplicates and blanks, keeping the first spelling."""
    seen = set()
    result = []
    for word in words:
        key = word.strip().lower()
        if not key or key in seen:
            continue
        seen.add(key)
        result.append(word.strip())
    return result


def load_catalog_file(path: Path) -> List[Category]:
    with open(path, encoding='utf-8') as f:
        return _catalog_adapter.validate_python(json.load(f))


class LexiconService:
    def __init__(
        self,
        categories: Optional[Sequence[Category]] = None,
        aliases: Optional[Mapping[str, Sequence[str]]] = None,
    ):
        self._categories: Dict[str, Category] = {}
        for category in (DEFAULT_CATEGORIES if categories is None else categories):
            self.add_category(category)
        # Keys are stored lowercase so lookups are case-insensitive
        source = WORD_ALIASES if aliases is None else aliases
        self._aliases: Dict[str, List[str]] = {k.lower(): list(v) for k, v in source.items()}

    @classmethod
    def from_settings(cls, conf=settings) -> 'LexiconService':
        lexicon = cls()
        if conf.catalog_file:
            for category in load_catalog_file(conf.catalog_file):
                lexicon.add_category(category)
            logger.info("Loaded extra categories from %s", conf.catalog_file)
        return lexicon

    def add_category(self, category: Category) -> None:
        words = distinct_words(category.words)
        if len(words) < CARD_WORD_COUNT:
            raise InsufficientWordPool(category.id, len(words), CARD_WORD_COUNT)
        self._categories[category.id] = category

    def list_categories(self) -> List[Category]:
        return list(self._categories.values())

    def find_category(self, category_id: str) -> Optional[Category]:
        return self._categories.get(category_id)

    def get_category(self, category_id: str) -> Category:
        category = self.find_category(category_id)
        if category is None:
            raise CategoryNotFound(category_id)
        return category

    def category_name(self, category_id: Optional[str]) -> Optional[str]:
        category = self.find_category(category_id) if category_id else None
        return category.name if category else None

    @property
    def aliases(self) -> Mapping[str, List[str]]:
        return self._aliases

    def aliases_for(self, word: str) -> List[str]:
        return list(self._aliases.get(word.lower(), []))

# Singleton instance
service = LexiconService.from_settings()
