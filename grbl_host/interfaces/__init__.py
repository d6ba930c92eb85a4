from .event_sink import EventSink, GrblEvent

__all__ = ["EventSink", "GrblEvent"]
