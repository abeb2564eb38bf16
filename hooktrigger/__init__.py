"""hooktrigger - route GitHub webhook events to subscribed jobs."""
__version__ = "0.1.0"
