from ggprov_core.queue.types import QueueMessage, QueuePublisher

__all__ = ["QueueMessage", "QueuePublisher"]
