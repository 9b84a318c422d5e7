"""ROS 2 adapters for the Nav2 action server, start trigger and localization."""
