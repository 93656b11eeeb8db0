"""Plain data types shared by the repositories, services and cogs."""
