"""Backend clients. Each one turns a backend's native protocol into a snapshot."""
