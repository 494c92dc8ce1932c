"""iOS project setup for kfire: Swift Package Manager injection into Xcode projects."""

__version__ = "0.3.0"
