from __future__ import annotations
import logging
from typing import Dict, Iterable, Optional, Tuple

from ..core.interfaces import ProbeResult
from ..core.kernel import CancelToken, LoopStats
from ..metrics.scoring import rate_probe

logger = logging.getLogger(__name__)


class ProbeSetupError(RuntimeError):
    """A probe could not acquire what it needs to run."""


class BaseProbe:
    """Common run/setup/teardown flow for probes.

    Subclasses implement ``measure`` and, when they hold scratch resources,
    ``setup``/``teardown``. A failing ``setup`` or ``measure`` produces a
    zero-rate ``Error`` result instead of aborting the run.
    """
    name: str = ""
    domain: str = ""
    rate_names: Tuple[str, ...] = ()

    def setup(self) -> None:
        pass

    def teardown(self) -> None:
        pass

    def measure(self, duration_ns: int, cancel: Optional[CancelToken]) -> ProbeResult:
        raise NotImplementedError

    def run(self, duration_ns: int, cancel: Optional[CancelToken] = None) -> ProbeResult:
        try:
            self.setup()
        except Exception as e:
            logger.warning(f"{self.name}: setup failed: {e}")
            self.teardown()
            return ProbeResult.failed(self.name, self.domain, str(e), self.rate_names)
        try:
            return self.measure(duration_ns, cancel)
        except Exception as e:
            logger.warning(f"{self.name}: measurement failed: {e}")
            return ProbeResult.failed(self.name, self.domain, str(e), self.rate_names)
        finally:
            self.teardown()

    def result(self,
               rates: Dict[str, float],
               phases: Iterable[LoopStats],
               extras: Optional[Dict[str, float]] = None) -> ProbeResult:
        """Assemble the ProbeResult; a phase where every iteration failed rates ``Error``."""
        phases = list(phases)
        return ProbeResult(
            name=self.name,
            domain=self.domain,
            rates=rates,
            elapsed_ns=sum(p.elapsed_ns for p in phases),
            rating=rate_probe(self.name, rates, failed=any(p.all_failed for p in phases)),
            extras=extras or {},
        )

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, domain={self.domain!r})"
