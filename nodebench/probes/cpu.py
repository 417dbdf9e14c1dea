"""
CPU probes: the cryptographic primitives a node spends its cycles on.

- Keccak-256: state trie and transaction hashing
- secp256k1 ECDSA: transaction signatures and ECRECOVER
- BLS12-381: consensus layer signatures
- BN254 (alt_bn128): zkSNARK precompiles
"""

from __future__ import annotations
import itertools
import os
from typing import Optional

from Crypto.Hash import keccak
from coincurve import PrivateKey, PublicKey
from py_ecc import optimized_bls12_381 as bls
from py_ecc import optimized_bn128 as bn

from ..core.interfaces import ProbeResult
from ..core.kernel import BYTES_PER_MB, CancelToken, run_phases, run_timed
from .base import BaseProbe


def keccak256(*parts: bytes) -> bytes:
    h = keccak.new(digest_bits=256)
    for p in parts:
        h.update(p)
    return h.digest()


def _random_scalar(order: int) -> int:
    return int.from_bytes(os.urandom(32), "big") % (order - 1) + 1


class KeccakProbe(BaseProbe):
    """Hashes inputs sized like real node data, round-robin."""
    name = "keccak"
    domain = "cpu"
    rate_names = ("hashes_per_second",)

    # hash of hash, two hashes, small payload, max fullNode encoding
    INPUT_SIZES = (32, 64, 128, 550)

    def setup(self) -> None:
        self._inputs = [os.urandom(n) for n in self.INPUT_SIZES]

    def teardown(self) -> None:
        self._inputs = []

    def measure(self, duration_ns: int, cancel: Optional[CancelToken]) -> ProbeResult:
        inputs = itertools.cycle(self._inputs)

        def hash_one():
            data = next(inputs)
            keccak.new(digest_bits=256, data=data).digest()
            return len(data)

        stats = run_timed(duration_ns, hash_one, cancel)
        return self.result(
            {"hashes_per_second": stats.rate()},
            [stats],
            extras={
                "total_hashes": float(stats.successes),
                "data_processed_mb": stats.bytes_processed / BYTES_PER_MB,
            },
        )


class ECDSAProbe(BaseProbe):
    """secp256k1 signing, verification and public key recovery (ECRECOVER)."""
    name = "ecdsa"
    domain = "cpu"
    rate_names = ("signatures_per_second", "verifications_per_second", "recoveries_per_second")

    PHASES = {"sign": (1, 3), "verify": (1, 3), "recover": (1, 3)}

    def setup(self) -> None:
        self._key = PrivateKey()
        self._public = self._key.public_key
        self._public_bytes = self._public.format()
        # a transaction hash
        self._message = os.urandom(32)
        self._signature = self._key.sign(self._message, hasher=None)
        self._recoverable = self._key.sign_recoverable(self._message, hasher=None)

    def teardown(self) -> None:
        self._key = self._public = None
        self._public_bytes = self._message = None
        self._signature = self._recoverable = None

    def _sign(self):
        self._key.sign_recoverable(self._message, hasher=None)

    def _verify(self):
        return self._public.verify(self._signature, self._message, hasher=None)

    def _recover(self):
        recovered = PublicKey.from_signature_and_message(self._recoverable, self._message, hasher=None)
        return recovered.format() == self._public_bytes

    def measure(self, duration_ns: int, cancel: Optional[CancelToken]) -> ProbeResult:
        phases = run_phases(
            duration_ns,
            self.PHASES,
            {"sign": self._sign, "verify": self._verify, "recover": self._recover},
            cancel,
        )
        return self.result(
            {
                "signatures_per_second": phases["sign"].rate(),
                "verifications_per_second": phases["verify"].rate(),
                "recoveries_per_second": phases["recover"].rate(),
            },
            phases.values(),
        )


class BLSProbe(BaseProbe):
    """BLS12-381 curve work behind consensus signatures.

    sign: G1 scalar multiplication; verify: one pairing; aggregate: 64 G2
    additions (a committee); batch_verify: a 4-way multi-pairing sharing one
    final exponentiation.
    """
    name = "bls"
    domain = "cpu"
    rate_names = (
        "signatures_per_second", "verifications_per_second",
        "aggregations_per_second", "batch_verifications_per_second",
    )

    PHASES = {"sign": (1, 4), "verify": (1, 4), "aggregate": (1, 4), "batch_verify": (1, 4)}
    COMMITTEE_SIZE = 64
    BATCH_SIZE = 4

    def _sign(self):
        bls.multiply(bls.G1, _random_scalar(bls.curve_order))

    def _verify(self):
        bls.pairing(bls.G2, bls.G1)

    def _aggregate(self):
        acc = bls.Z2
        for _ in range(self.COMMITTEE_SIZE):
            acc = bls.add(acc, bls.G2)

    def _batch_verify(self):
        f = bls.pairing(bls.G2, bls.G1, final_exponentiate=False)
        for _ in range(self.BATCH_SIZE - 1):
            f = f * bls.pairing(bls.G2, bls.G1, final_exponentiate=False)
        bls.final_exponentiate(f)

    def measure(self, duration_ns: int, cancel: Optional[CancelToken]) -> ProbeResult:
        phases = run_phases(
            duration_ns,
            self.PHASES,
            {
                "sign": self._sign,
                "verify": self._verify,
                "aggregate": self._aggregate,
                "batch_verify": self._batch_verify,
            },
            cancel,
        )
        return self.result(
            {
                "signatures_per_second": phases["sign"].rate(),
                "verifications_per_second": phases["verify"].rate(),
                "aggregations_per_second": phases["aggregate"].rate(),
                "batch_verifications_per_second": phases["batch_verify"].rate(),
            },
            phases.values(),
        )


class BN256Probe(BaseProbe):
    """alt_bn128 precompiles: ECADD (0x06), ECMUL (0x07), pairing (0x08)."""
    name = "bn256"
    domain = "cpu"
    rate_names = ("g1_adds_per_second", "g1_scalar_muls_per_second", "pairings_per_second")

    PHASES = {"add": (3, 10), "mul": (3, 10), "pair": (4, 10)}

    def setup(self) -> None:
        self._a = bn.multiply(bn.G1, _random_scalar(bn.curve_order))
        self._b = bn.multiply(bn.G1, _random_scalar(bn.curve_order))
        self._q = bn.multiply(bn.G2, _random_scalar(bn.curve_order))
        self._scalar = _random_scalar(bn.curve_order)

    def measure(self, duration_ns: int, cancel: Optional[CancelToken]) -> ProbeResult:
        phases = run_phases(
            duration_ns,
            self.PHASES,
            {
                "add": lambda: bn.add(self._a, self._b),
                "mul": lambda: bn.multiply(self._a, self._scalar),
                "pair": lambda: bn.pairing(self._q, self._a),
            },
            cancel,
        )
        return self.result(
            {
                "g1_adds_per_second": phases["add"].rate(),
                "g1_scalar_muls_per_second": phases["mul"].rate(),
                "pairings_per_second": phases["pair"].rate(),
            },
            phases.values(),
        )
