"""HTTP access to the remote session store."""
