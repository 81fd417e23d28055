import threading
from pathlib import Path

import yaml
from transitions.extensions import LockedMachine


class CaptureFSM:
    """
    Finite State Machine for the camera capture lifecycle.
    Loads its structure from capture_states.yaml; callbacks named there are
    supplied by the owner through `callbacks`.
    """

    def __init__(self, config_path=None, callbacks=None):
        """
        :param config_path: Optional path to the YAML FSM definition.
        :param callbacks: Dict of callables referenced by name in the YAML
                          definition. Example: {"release_stream": some_function}
        """
        self.config_path = config_path or Path(__file__).parent / "capture_states.yaml"
        self.callbacks = callbacks or {}

        with open(self.config_path, "r") as f:
            fsm_config = yaml.safe_load(f)

        states = fsm_config.get("states", [])
        transitions = fsm_config.get("transitions", [])
        initial = fsm_config.get("initial", "idle")

        # Callbacks must exist on the model before the machine resolves them
        for name, func in self.callbacks.items():
            if not callable(func):
                raise ValueError(f"Callback '{name}' must be callable, got {type(func)}")
            setattr(self, name, func)

        # LockedMachine serialises triggers, so two start() calls can never
        # both reach the device. The owner can hold `lock` to read state and
        # resources consistently with in-flight transitions.
        self.lock = threading.RLock()
        self.machine = LockedMachine(
            machine_context=[self.lock],
            model=self,
            states=states,
            transitions=transitions,
            initial=initial,
            auto_transitions=False,
        )
