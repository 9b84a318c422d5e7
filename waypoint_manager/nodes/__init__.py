"""ROS 2 node entry points."""
