"""Navigation and selection core of the ambulance reservation console."""
