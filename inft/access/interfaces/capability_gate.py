from abc import ABC, abstractmethod


class CapabilityGate(ABC):
    """
    Interface consulted by every privileged protocol operation.
    Components perform no authorization logic beyond asking the gate.
    """
    @abstractmethod
    def caller_has_role(self, caller: str, role: int) -> bool:
        pass

    @abstractmethod
    def is_feature_enabled(self, feature: int) -> bool:
        pass
