"""Analytics proxy routing — fans tracking calls out to every enabled destination.

Destinations are pluggable adapters (Mixpanel, GA4, LogRocket, Amplitude,
or any custom class implementing the DestinationAdapter protocol).  The
AnalyticsProxy dispatcher forwards each call to every adapter whose
enabled flag is set; one failing destination never blocks the others.
"""
