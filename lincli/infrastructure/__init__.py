"""Infrastructure Layer: Contains concrete implementations and adapters.

Connects the application to the outside world (APIs, databases, file systems,
UI libraries, etc.) by implementing the interfaces defined in the domain layer.
Also includes agents and utility services.
""" 