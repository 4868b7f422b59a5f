from abc import ABC, abstractmethod
from typing import Any

import streamlit as st


class IStateProvider(ABC):
    @abstractmethod
    def get(self, key: str, default: Any = None) -> Any:
        pass

    @abstractmethod
    def set(self, key: str, value: Any) -> None:
        pass

    @abstractmethod
    def pop(self, key: str, default: Any = None) -> Any:
        pass

    @abstractmethod
    def clear(self) -> None:
        pass


class StreamlitStateProvider(IStateProvider):
    """Per-browser-session storage backed by st.session_state."""

    def get(self, key: str, default: Any = None) -> Any:
        return st.session_state.get(key, default)

    def set(self, key: str, value: Any) -> None:
        st.session_state[key] = value

    def pop(self, key: str, default: Any = None) -> Any:
        return st.session_state.pop(key, default)

    def clear(self) -> None:
        st.session_state.clear()


class InMemoryStateProvider(IStateProvider):
    """Plain dict storage for headless runs and tests."""

    def __init__(self) -> None:
        self._data: dict[str, Any] = {}

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value

    def pop(self, key: str, default: Any = None) -> Any:
        return self._data.pop(key, default)

    def clear(self) -> None:
        self._data.clear()
