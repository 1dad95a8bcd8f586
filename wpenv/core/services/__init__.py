"""Services — compose generation, credentials and docker invocation."""
