import os
from glob import glob

from setuptools import find_packages, setup

package_name = 'waypoint_manager'
launch_files = glob('waypoint_manager/launch/**/*.py', recursive=True)
param_files = glob('waypoint_manager/param/*.yaml')

setup(
    name=package_name,
    version='0.2.0',
    packages=find_packages(exclude=['test']),
    package_data={package_name: ['param/*.yaml', 'launch/*.py']},
    data_files=[
        ('share/ament_index/resource_index/packages', ['resource/' + package_name]),
        (os.path.join('share', package_name), ['package.xml']),
        (os.path.join('share', package_name, 'launch'), launch_files),
        (os.path.join('share', package_name, 'param'), param_files),
    ],
    install_requires=['setuptools', 'PyYAML'],
    extras_require={'test': ['pytest']},
    zip_safe=True,
    maintainer='Intelligent Robotics',
    maintainer_email='maintainer@example.com',
    description='Cyclic Nav2 waypoint sequencer driven by a one-shot start trigger.',
    license='BSD-3-Clause',
    tests_require=['pytest'],
    entry_points={
        'console_scripts': [
            'waypoint_manager = waypoint_manager.nodes.waypoint_manager_node:main',
        ],
    },
)
