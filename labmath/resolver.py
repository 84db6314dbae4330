"""Resolve compound names to formulas and molecular weights.

Names are looked up in PubChem's PUG REST service. Whatever formula the
service reports is parsed locally and its molecular weight recomputed from
the atomic weight table, so resolved and locally parsed compounds always
carry consistent numbers.

Lookups may be slow, so :class:`ResolverSession` runs them on a thread pool
and only delivers the response to the most recent request; earlier responses
that arrive late are dropped.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Tuple
from urllib.parse import quote

import requests

from labmath.chemistry.formula import (
    Composition,
    looks_like_formula,
    parse_formula,
)
from labmath.chemistry.weight import molecular_weight
from labmath.errors import (
    FormulaError,
    InvalidFormulaSyntax,
    LabMathError,
    NameNotResolved,
    UnbalancedGroup,
    UnknownElement,
)

logger = logging.getLogger(__name__)

PUBCHEM_BASE_URL = "https://pubchem.ncbi.nlm.nih.gov/rest/pug"


@dataclass(frozen=True)
class ResolverConfig:
    base_url: str = PUBCHEM_BASE_URL
    timeout: float = 10.0
    user_agent: str = "labmath/0.1"


@dataclass(frozen=True)
class ResolvedCompound:
    """A compound identified either by local parsing or by the service.

    ``compound_id`` is the PubChem CID, or ``None`` for a local parse.
    """

    query: str
    formula: str
    molecular_weight: float
    display_name: str
    compound_id: Optional[int] = None
    synonyms: Tuple[str, ...] = ()
    composition: Composition = field(default_factory=dict)


class PubChemResolver:
    """Name -> compound lookups against PubChem PUG REST."""

    def __init__(self, config: Optional[ResolverConfig] = None):
        self.config = config or ResolverConfig()

    def _get_json(self, path: str) -> Any:
        url = f"{self.config.base_url.rstrip('/')}/{path}"
        response = requests.get(
            url,
            timeout=self.config.timeout,
            headers={"User-Agent": self.config.user_agent},
        )
        response.raise_for_status()
        return response.json()

    def _compound_id(self, query: str) -> int:
        name = quote(query, safe="")
        data = self._get_json(f"compound/name/{name}/cids/JSON")
        return int(data["IdentifierList"]["CID"][0])

    def _properties(self, cid: int) -> dict:
        data = self._get_json(
            f"compound/cid/{cid}/property/MolecularFormula,MolecularWeight,IUPACName/JSON"
        )
        return data["PropertyTable"]["Properties"][0]

    def _synonyms(self, cid: int) -> Tuple[str, ...]:
        try:
            data = self._get_json(f"compound/cid/{cid}/synonyms/JSON")
            return tuple(data["InformationList"]["Information"][0]["Synonym"])
        except (requests.RequestException, KeyError, IndexError, TypeError, ValueError) as exc:
            logger.debug("No synonyms for CID %s: %s", cid, exc)
            return ()

    def resolve(self, query: str) -> ResolvedCompound:
        """Look ``query`` up and return its formula and recomputed MW.

        Raises:
            NameNotResolved: If the service is unreachable, does not know the
                name, returns an unexpected payload, or reports a formula that
                does not parse.
        """
        query = query.strip()
        if not query:
            raise NameNotResolved(query, "empty query")
        try:
            cid = self._compound_id(query)
            props = self._properties(cid)
            reported_formula = str(props["MolecularFormula"])
        except requests.RequestException as exc:
            raise NameNotResolved(query, f"request failed ({exc})") from exc
        except (KeyError, IndexError, TypeError, ValueError) as exc:
            raise NameNotResolved(query, "unexpected response from PubChem") from exc

        try:
            composition = parse_formula(reported_formula)
        except FormulaError as exc:
            raise NameNotResolved(
                query, f"reported formula {reported_formula!r} could not be parsed"
            ) from exc

        mw = molecular_weight(composition)
        compound = ResolvedCompound(
            query=query,
            formula=reported_formula,
            molecular_weight=mw,
            display_name=str(props.get("IUPACName") or query),
            compound_id=cid,
            synonyms=self._synonyms(cid),
            composition=composition,
        )
        logger.debug(
            "Resolved %r -> CID %s, %s, %.3f g/mol (reported %s)",
            query,
            cid,
            reported_formula,
            mw,
            props.get("MolecularWeight"),
        )
        return compound


def lookup_compound(query: str, resolver: Optional[PubChemResolver] = None) -> ResolvedCompound:
    """Parse ``query`` as a formula, falling back to name resolution.

    Queries that look like formulas are parsed locally first. A parse failure
    hands the query on to ``resolver``, so names such as ``"Tris"`` that pass
    the formula shape check still resolve.
    """
    text = query.strip()
    if looks_like_formula(text):
        try:
            composition = parse_formula(text)
        except (InvalidFormulaSyntax, UnknownElement, UnbalancedGroup) as exc:
            logger.debug("%r is not a parseable formula (%s); resolving by name", text, exc)
        else:
            return ResolvedCompound(
                query=text,
                formula=text,
                molecular_weight=molecular_weight(composition),
                display_name=text,
                composition=composition,
            )
    resolver = resolver or PubChemResolver()
    return resolver.resolve(text)


class LatestRequestGate:
    """Hands out increasing tokens; only the newest one is current."""

    def __init__(self):
        self._lock = threading.Lock()
        self._latest = 0

    def issue(self) -> int:
        with self._lock:
            self._latest += 1
            return self._latest

    def is_current(self, token: int) -> bool:
        with self._lock:
            return token == self._latest


class ResolverSession:
    """Run lookups in the background and deliver only the latest response.

    Args:
        resolver: Object with a ``resolve(query)`` method. Defaults to
            :class:`PubChemResolver`.
        max_workers (int): Size of the thread pool.
    """

    def __init__(self, resolver: Optional[Any] = None, max_workers: int = 2):
        self.resolver = resolver or PubChemResolver()
        self.gate = LatestRequestGate()
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="labmath-resolver"
        )

    def submit(
        self,
        query: str,
        callback: Callable[[ResolvedCompound], None],
        on_error: Optional[Callable[[LabMathError], None]] = None,
    ) -> "Future[Optional[ResolvedCompound]]":
        """Start a lookup; ``callback`` runs only if no newer request exists.

        Failures go to ``on_error`` when given; otherwise they are re-raised
        inside the returned future. Stale results and stale failures are both
        dropped.
        """
        token = self.gate.issue()

        def run() -> Optional[ResolvedCompound]:
            try:
                compound = lookup_compound(query, self.resolver)
            except LabMathError as exc:
                if not self.gate.is_current(token):
                    logger.debug("Dropping stale failure for %r: %s", query, exc)
                    return None
                if on_error is None:
                    raise
                on_error(exc)
                return None
            if not self.gate.is_current(token):
                logger.debug("Dropping stale response for %r (request %d)", query, token)
                return None
            callback(compound)
            return compound

        return self._executor.submit(run)

    def close(self) -> None:
        self._executor.shutdown(wait=True)

    def __enter__(self) -> "ResolverSession":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
