"""Exception types.

Construction and precheck failures are raised to the caller. Verification
failures are raised internally and turned into a reject result at the
verify / execute boundary.
"""


class WitnessError(ValueError):
    """Witness inputs violate the circuit's construction contract."""


class UnsatisfiedConstraintError(ValueError):
    """The assigned witness does not satisfy every constraint."""

    def __init__(self, failures: list) -> None:
        self.failures = list(failures)
        shown = "\n".join(f"  {f}" for f in self.failures[:10])
        more = len(self.failures) - 10
        if more > 0:
            shown += f"\n  ... and {more} more"
        super().__init__(f"{len(self.failures)} constraint failure(s):\n{shown}")


class ParameterMismatchError(ValueError):
    """In-circuit hash gates disagree with the reference permutation."""


class ProofFormatError(ValueError):
    """Proof bytes or instances are malformed."""


class VerificationError(ValueError):
    """A verifier equation does not hold."""


class DeploymentError(RuntimeError):
    """The execution environment could not deploy a program."""


class VmError(Exception):
    """Exceptional halt inside the execution environment."""
