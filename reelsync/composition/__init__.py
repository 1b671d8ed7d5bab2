"""Visual track layout: Ken Burns motion for stills and scene frame ranges."""
