"""Web front end for the tuition loan calculator."""
