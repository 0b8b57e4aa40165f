"""
Search over every potion that can be made from a set of ingredients.

All 2- and 3-ingredient combinations are enumerated over ingredients
sorted by name, filtered by an effect-sharing predicate, turned into
Potions and ranked by gold value. Combinations are processed in chunks,
optionally on a ThreadPoolExecutor; chunk results are reassembled in
enumeration order so the ranking does not depend on the worker count.
"""

import heapq
import logging
import math
import time
from collections import deque
from concurrent.futures import Future, ThreadPoolExecutor
from itertools import combinations, islice
from typing import (
    Callable,
    Deque,
    Iterable,
    Iterator,
    List,
    Optional,
    Sequence,
    Tuple,
)

from ..game_data.models import Ingredient
from ..game_data.service import GameData
from .cache import SharedEffects
from .potion import MAX_INGREDIENTS, MIN_INGREDIENTS, Potion, PotionCraftError

DEFAULT_CHUNK_SIZE = 20_000

# size, processed combinations, total combinations
ProgressCallback = Callable[[int, int, int], None]
SharesEffects = Callable[[Ingredient, Ingredient], bool]

logger = logging.getLogger(__name__)


def _shares_effects(a: Ingredient, b: Ingredient) -> bool:
    return a.shares_effects_with(b)


def is_valid_pair(a: Ingredient, b: Ingredient, shares: SharesEffects = _shares_effects) -> bool:
    """A pair is valid when the two ingredients share at least one effect."""
    return shares(a, b)


def is_valid_triple(
    a: Ingredient,
    b: Ingredient,
    c: Ingredient,
    shares: SharesEffects = _shares_effects,
) -> bool:
    """Whether every ingredient of the triple contributes to the potion.

    The three ingredients form a triangle with an edge wherever two of them
    share effects. At least two edges are required, and the shared effect
    sets of the edges must not all be identical; otherwise one ingredient
    adds nothing the other two do not already make.
    """
    edges = [
        first.effects_shared_with(second)
        for first, second in ((a, b), (b, c), (c, a))
        if shares(first, second)
    ]
    if len(edges) < 2:
        return False
    return any(edge != edges[0] for edge in edges[1:])


def sort_ingredients(ingredients: Iterable[Ingredient]) -> List[Ingredient]:
    """Enumeration order for the search: by display name, then global id."""
    return sorted(ingredients, key=lambda ing: (ing.display_name, ing.global_id))


def select_ingredients(
    game_data: GameData,
    allow: Optional[Iterable[str]] = None,
    deny: Optional[Iterable[str]] = None,
) -> List[Ingredient]:
    """Pick the ingredients to search over.

    Names are matched case-insensitively against display names and editor
    ids. With `allow`, only matching ingredients are kept; with `deny`,
    matching ingredients are dropped.

    Raises:
        ValueError: if both `allow` and `deny` are given
    """
    if allow is not None and deny is not None:
        raise ValueError("allow and deny lists are mutually exclusive")

    ingredients = list(game_data.ingredients.values())
    if allow is None and deny is None:
        return ingredients

    names = {name.strip().lower() for name in (allow if allow is not None else deny) if name.strip()}

    def matches(ingredient: Ingredient) -> bool:
        return (
            ingredient.display_name.lower() in names
            or ingredient.editor_id.lower() in names
        )

    if deny is not None:
        selected = [ing for ing in ingredients if not matches(ing)]
        logger.info(f"Excluded {len(ingredients) - len(selected)} ingredients by deny list")
        return selected

    selected = [ing for ing in ingredients if matches(ing)]
    matched = {ing.display_name.lower() for ing in selected}
    matched.update(ing.editor_id.lower() for ing in selected)
    for name in sorted(names - matched):
        logger.warning(f"Allow list entry {name!r} matches no ingredient")
    logger.info(f"Selected {len(selected)} ingredients by allow list")
    return selected


class PotionsList:
    """Ranked 2- and 3-ingredient potions for a GameData."""

    def __init__(
        self,
        game_data: GameData,
        cache: Optional[SharedEffects] = None,
        workers: int = 1,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ):
        if workers <= 0:
            raise ValueError(f"workers must be positive, got {workers}")
        if chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive, got {chunk_size}")
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")
        self.game_data = game_data
        self.cache = cache
        self.workers = workers
        self.chunk_size = chunk_size
        self.potions_2: List[Potion] = []
        self.potions_3: List[Potion] = []

    def _shares(self) -> SharesEffects:
        if self.cache is None:
            return _shares_effects
        return self.cache.cached_shares_effects_with

    def build_potions(
        self,
        ingredients: Optional[Iterable[Ingredient]] = None,
        progress: Optional[ProgressCallback] = None,
    ) -> None:
        """Compute all potions.

        Args:
            ingredients: Ingredients to combine; all of GameData by default
            progress: Called as ``progress(size, processed, total)`` after
                every chunk of combinations
        """
        if ingredients is None:
            ingredients = self.game_data.ingredients.values()
        ordered = sort_ingredients(ingredients)
        self.logger.info(f"Building potions from {len(ordered)} ingredients")

        self.potions_2 = self._build_potions(ordered, 2, progress)
        self.potions_3 = self._build_potions(ordered, 3, progress)
        if self.cache is not None:
            self.cache.clear()

        self.logger.info(
            f"Found {len(self.potions_2)} 2-ingredient and "
            f"{len(self.potions_3)} 3-ingredient potions"
        )

    def _build_potions(
        self,
        ingredients: Sequence[Ingredient],
        size: int,
        progress: Optional[ProgressCallback],
    ) -> List[Potion]:
        if not MIN_INGREDIENTS <= size <= MAX_INGREDIENTS:
            raise ValueError(f"unsupported combination size {size}")

        start = time.perf_counter()
        total = math.comb(len(ingredients), size)
        chunks = self._chunks(combinations(ingredients, size))

        potions: List[Potion] = []
        processed = 0
        for chunk_len, chunk_potions in self._run_chunks(chunks, size):
            potions.extend(chunk_potions)
            processed += chunk_len
            if progress is not None:
                progress(size, processed, total)
        self.logger.debug(
            f"Found {len(potions)} valid {size}-ingredient combos out of {total} "
            f"(in {time.perf_counter() - start:.3f}s)"
        )

        start = time.perf_counter()
        # Stable, so equal values keep enumeration order
        potions.sort(key=lambda potion: potion.gold_value, reverse=True)
        self.logger.debug(
            f"Sorted {len(potions)} potions (in {time.perf_counter() - start:.3f}s)"
        )
        return potions

    def _chunks(
        self, combos: Iterator[Tuple[Ingredient, ...]]
    ) -> Iterator[List[Tuple[Ingredient, ...]]]:
        while True:
            chunk = list(islice(combos, self.chunk_size))
            if not chunk:
                return
            yield chunk

    def _process_chunk(
        self, chunk: List[Tuple[Ingredient, ...]], size: int
    ) -> Tuple[int, List[Potion]]:
        shares = self._shares()
        if size == 2:
            valid = [combo for combo in chunk if is_valid_pair(*combo, shares=shares)]
        else:
            valid = [combo for combo in chunk if is_valid_triple(*combo, shares=shares)]

        potions: List[Potion] = []
        for combo in valid:
            try:
                potions.append(Potion.from_ingredients(combo, self.game_data))
            except PotionCraftError:
                continue
        return len(chunk), potions

    def _run_chunks(
        self, chunks: Iterator[List[Tuple[Ingredient, ...]]], size: int
    ) -> Iterator[Tuple[int, List[Potion]]]:
        """Process chunks and yield their results in chunk order."""
        if self.workers == 1:
            for chunk in chunks:
                yield self._process_chunk(chunk, size)
            return

        # Bounded number of chunks in flight; results are taken in
        # submission order to keep the output deterministic
        max_pending = self.workers * 2
        with ThreadPoolExecutor(max_workers=self.workers) as executor:
            pending: Deque[Future] = deque()
            for chunk in chunks:
                pending.append(executor.submit(self._process_chunk, chunk, size))
                if len(pending) >= max_pending:
                    yield pending.popleft().result()
            while pending:
                yield pending.popleft().result()

    def get_potions(self) -> Iterator[Potion]:
        """All potions by gold value descending.

        Merges the two ranked lists; on equal value the 2-ingredient potion
        comes first.
        """
        return heapq.merge(
            self.potions_2, self.potions_3, key=lambda potion: -potion.gold_value
        )

    def top(self, limit: int) -> List[Potion]:
        return list(islice(self.get_potions(), limit))

    def __len__(self) -> int:
        return len(self.potions_2) + len(self.potions_3)
